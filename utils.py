DEBUG_MODE = False  # Default to quiet; enable via set_debug(True) when tracing


def set_debug(value):
    """
    Set debug mode on/off

    Args:
        value (bool): True to enable trace output, False to disable
    """
    global DEBUG_MODE
    DEBUG_MODE = value


def debug_print(text):
    """
    Prints the given text to the console when debug mode is on.

    Args:
        text (str): The text to print.
    """
    if DEBUG_MODE:
        print(text)


def parse_hex_bytes(text):
    """
    Parse a hex byte string such as "A9 42 AA" or "a942aa" into a list of ints.

    Raises:
        ValueError: if the text is not a whole number of hex bytes.
    """
    tokens = text.replace(",", " ").split()
    digits = "".join(t[2:] if t.lower().startswith("0x") else t for t in tokens)
    if len(digits) % 2:
        raise ValueError(f"Odd number of hex digits in '{text}'")
    return [int(digits[i : i + 2], 16) for i in range(0, len(digits), 2)]
