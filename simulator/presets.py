from simulator.program import load_program
from simulator.tape import BLANK

B = BLANK


def _rules(*rows):
    return {f"{state},{read}": {"write": write, "move": move, "next": nxt}
            for state, read, write, move, nxt in rows}


PRESETS = {
    "binaryIncrement": {
        "name": "Binary Increment",
        "description": "Adds 1 to a binary number. Try: 1011 -> 1100",
        "initialTape": "1011",
        "startPosition": 3,
        "states": ["scan", "carry", "done"],
        "initialState": "scan",
        "haltStates": ["done"],
        "transitions": _rules(
            ("scan", "0", "0", "R", "scan"),
            ("scan", "1", "1", "R", "scan"),
            ("scan", B, B, "L", "carry"),
            ("carry", "0", "1", "L", "done"),
            ("carry", "1", "0", "L", "carry"),
            ("carry", B, "1", "L", "done"),
        ),
    },
    "binaryDecrement": {
        "name": "Binary Decrement",
        "description": "Subtracts 1 from a binary number. Try: 1100 -> 1011",
        "initialTape": "1100",
        "startPosition": 3,
        "states": ["scan", "borrow", "done"],
        "initialState": "scan",
        "haltStates": ["done"],
        "transitions": _rules(
            ("scan", "0", "0", "R", "scan"),
            ("scan", "1", "1", "R", "scan"),
            ("scan", B, B, "L", "borrow"),
            ("borrow", "1", "0", "L", "done"),
            ("borrow", "0", "1", "L", "borrow"),
        ),
    },
    "unaryStringCopy": {
        "name": "Unary String Copy",
        "description": "Copies a string of 1s. Try: 111 -> 111#111",
        "initialTape": "111",
        "startPosition": 0,
        "states": ["findOne", "goRight", "atSep", "return", "toStart", "clean", "done"],
        "initialState": "findOne",
        "haltStates": ["done"],
        "transitions": _rules(
            # mark the next 1 with X
            ("findOne", "1", "X", "R", "goRight"),
            ("findOne", "X", "X", "R", "findOne"),
            ("findOne", "#", "#", "L", "toStart"),
            ("findOne", B, B, "L", "toStart"),
            ("goRight", "1", "1", "R", "goRight"),
            ("goRight", "X", "X", "R", "goRight"),
            ("goRight", "#", "#", "R", "atSep"),
            ("goRight", B, "#", "R", "atSep"),
            ("atSep", "Y", "Y", "R", "atSep"),
            ("atSep", B, "Y", "L", "return"),
            ("return", "Y", "Y", "L", "return"),
            ("return", "#", "#", "L", "return"),
            ("return", "1", "1", "L", "return"),
            ("return", "X", "X", "R", "findOne"),
            ("toStart", "X", "X", "L", "toStart"),
            ("toStart", B, B, "R", "clean"),
            # X -> 1, Y -> 1, keep #
            ("clean", "X", "1", "R", "clean"),
            ("clean", "1", "1", "R", "clean"),
            ("clean", "#", "#", "R", "clean"),
            ("clean", "Y", "1", "R", "clean"),
            ("clean", B, B, "L", "done"),
        ),
    },
    "binaryStringCopy": {
        "name": "Binary String Copy",
        "description": "Copies a binary string. Try: 101 -> 101#101",
        "initialTape": "101",
        "startPosition": 0,
        "states": ["find", "go0", "go1", "place0", "place1", "return", "toStart", "clean", "done"],
        "initialState": "find",
        "haltStates": ["done"],
        "transitions": _rules(
            ("find", "0", "A", "R", "go0"),
            ("find", "1", "B", "R", "go1"),
            ("find", "A", "A", "R", "find"),
            ("find", "B", "B", "R", "find"),
            ("find", "#", "#", "L", "toStart"),
            ("find", B, B, "L", "toStart"),
            ("go0", "0", "0", "R", "go0"),
            ("go0", "1", "1", "R", "go0"),
            ("go0", "A", "A", "R", "go0"),
            ("go0", "B", "B", "R", "go0"),
            ("go0", "#", "#", "R", "place0"),
            ("go0", B, "#", "R", "place0"),
            ("go1", "0", "0", "R", "go1"),
            ("go1", "1", "1", "R", "go1"),
            ("go1", "A", "A", "R", "go1"),
            ("go1", "B", "B", "R", "go1"),
            ("go1", "#", "#", "R", "place1"),
            ("go1", B, "#", "R", "place1"),
            ("place0", "0", "0", "R", "place0"),
            ("place0", "1", "1", "R", "place0"),
            ("place0", B, "0", "L", "return"),
            ("place1", "0", "0", "R", "place1"),
            ("place1", "1", "1", "R", "place1"),
            ("place1", B, "1", "L", "return"),
            ("return", "0", "0", "L", "return"),
            ("return", "1", "1", "L", "return"),
            ("return", "#", "#", "L", "return"),
            ("return", "A", "A", "R", "find"),
            ("return", "B", "B", "R", "find"),
            ("toStart", "A", "A", "L", "toStart"),
            ("toStart", "B", "B", "L", "toStart"),
            ("toStart", B, B, "R", "clean"),
            # A -> 0, B -> 1
            ("clean", "A", "0", "R", "clean"),
            ("clean", "B", "1", "R", "clean"),
            ("clean", "0", "0", "R", "clean"),
            ("clean", "1", "1", "R", "clean"),
            ("clean", "#", "#", "R", "clean"),
            ("clean", B, B, "L", "done"),
        ),
    },
    "balancedParens": {
        "name": "Balanced Parens",
        "description": "Checks if parentheses are balanced. Writes Y or N",
        "initialTape": "(())",
        "startPosition": 0,
        "states": ["scan", "match", "check", "yes", "no"],
        "initialState": "scan",
        "haltStates": ["yes", "no"],
        "transitions": _rules(
            ("scan", "(", "(", "R", "scan"),
            ("scan", ")", "X", "L", "match"),
            ("scan", "X", "X", "R", "scan"),
            ("scan", B, B, "L", "check"),
            ("match", "(", "X", "R", "scan"),
            ("match", "X", "X", "L", "match"),
            ("match", B, "N", "R", "no"),
            ("check", "X", "X", "L", "check"),
            ("check", "(", "N", "R", "no"),
            ("check", B, "Y", "R", "yes"),
        ),
    },
    "busyBeaver3": {
        "name": "Busy Beaver (3-state)",
        "description": "The 3-state Busy Beaver: six 1s in 13 steps",
        "initialTape": "",
        "startPosition": 10,
        "states": ["A", "B", "C", "HALT"],
        "initialState": "A",
        "haltStates": ["HALT"],
        "transitions": _rules(
            ("A", B, "1", "R", "B"),
            ("A", "1", "1", "L", "C"),
            ("B", B, "1", "L", "A"),
            ("B", "1", "1", "R", "B"),
            ("C", B, "1", "L", "B"),
            ("C", "1", "1", "R", "HALT"),
        ),
    },
    "unaryDouble": {
        "name": "Unary Doubler",
        "description": "Doubles a unary number. Try: 111 -> 111111",
        "initialTape": "111",
        "startPosition": 0,
        "states": ["mark", "goRight", "return", "clean", "done"],
        "initialState": "mark",
        "haltStates": ["done"],
        "transitions": _rules(
            ("mark", "1", "X", "R", "goRight"),
            ("mark", B, B, "L", "clean"),
            ("mark", "X", "X", "R", "mark"),
            ("mark", "Y", "Y", "R", "mark"),
            ("goRight", "1", "1", "R", "goRight"),
            ("goRight", "X", "X", "R", "goRight"),
            ("goRight", "Y", "Y", "R", "goRight"),
            ("goRight", B, "Y", "L", "return"),
            ("return", "1", "1", "L", "return"),
            ("return", "X", "X", "L", "return"),
            ("return", "Y", "Y", "L", "return"),
            ("return", B, B, "R", "mark"),
            ("clean", "X", "1", "L", "clean"),
            ("clean", "Y", "1", "L", "clean"),
            ("clean", "1", "1", "L", "clean"),
            ("clean", B, B, "R", "done"),
        ),
    },
    "blank": {
        "name": "Blank (Custom)",
        "description": "Start from scratch and add your own transitions",
        "initialTape": "",
        "startPosition": 5,
        "states": ["q0", "q1", "HALT"],
        "initialState": "q0",
        "haltStates": ["HALT"],
        "transitions": {},
    },
}


def preset_names():
    return list(PRESETS)


def get_preset(name):
    if name not in PRESETS:
        raise KeyError(f"Unknown preset: {name}. Available: {', '.join(PRESETS)}")
    return load_program(PRESETS[name])
