def check_version(version, minimum):
    """True when a dotted 'x.y.z' version is at least minimum, e.g. (1, 2, 0).

    Anything that is not exactly three parts counts as too old.
    """
    parts = version.split('.') if isinstance(version, str) else []
    if len(parts) != 3:
        return False
    numbers = []
    for part in parts:
        numbers.append(int(part) if part.isdigit() else 0)
    return tuple(numbers) >= tuple(minimum)
