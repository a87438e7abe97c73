"""Pure helper functions for scrolling and selection in list panes."""


def calculate_scroll_offset(
    selected: int,
    current_scroll: int,
    visible_items: int,
    total_items: int,
) -> int:
    """Return the scroll offset that keeps the selected row on screen.

    Examples:
        >>> calculate_scroll_offset(15, 0, 10, 20)
        6
        >>> calculate_scroll_offset(2, 10, 10, 20)
        2
    """
    if visible_items <= 0 or total_items <= visible_items:
        return 0

    if selected >= current_scroll + visible_items:
        return selected - visible_items + 1
    if selected < current_scroll:
        return selected

    return min(current_scroll, total_items - visible_items)


def move_selection(current: int, delta: int, total_items: int, wrap: bool = False) -> int:
    """Move selection by delta, clamping (or wrapping) at the ends."""
    if total_items == 0:
        return 0
    if wrap:
        return (current + delta) % total_items
    return max(0, min(current + delta, total_items - 1))


def clamp_selection(selection: int, total_items: int) -> int:
    """Clamp selection to [0, total_items - 1]; 0 for an empty list."""
    if total_items == 0:
        return 0
    return max(0, min(selection, total_items - 1))
