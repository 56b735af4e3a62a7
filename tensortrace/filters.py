"""Event selection: name allow-lists and deterministic sampling.

Both predicates are pure and never raise. Sampling is driven by the event
index rather than a random source, so a fixed call order always selects the
same events.
"""


def accepts(name: str, dispatch_filter: str) -> bool:
    """Check whether an event name passes a comma-separated allow-list.

    Args:
        name: Event name (compared case-sensitively)
        dispatch_filter: Comma-separated names; whitespace around each entry is
            ignored. An empty filter accepts everything.

    Returns:
        bool: True if the filter is empty or one entry equals `name`

    Examples:
        >>> accepts("b", "a, b,c")
        True
        >>> accepts("bb", "a, b,c")
        False
    """
    if not dispatch_filter:
        return True
    return any(item.strip() == name for item in dispatch_filter.split(','))


def samples(index: int, percent: int) -> bool:
    """Check whether the event at `index` falls inside the sampled fraction.

    Percentages below 0 or at/above 100 capture every event; 0 captures none.
    """
    if percent < 0 or percent >= 100:
        return True
    return (index % 100) < percent
