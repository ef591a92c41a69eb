import argparse

from simulator.presets import get_preset
from simulator.program import load_program_file
from simulator.tape import BLANK


def program_symbols(program):
    """Symbols read by any rule, in first-seen order, blank last."""
    symbols = []
    for _, symbol in program.transitions:
        if symbol not in symbols and symbol != BLANK:
            symbols.append(symbol)
    if any(symbol == BLANK for _, symbol in program.transitions):
        symbols.append(BLANK)
    return symbols


def build_table(program):
    """Rows of [state, action, action, ...] in compact '<write><move><next>' notation."""
    symbols = program_symbols(program)
    rows = []
    states = list(program.states)
    for state, _ in program.transitions:
        if state not in states:
            states.append(state)
    for state in states:
        row = [state]
        for symbol in symbols:
            transition = program.transitions.lookup(state, symbol)
            if transition is None:
                row.append("HALT" if state in program.halt_states else "-")
            else:
                row.append(f"{transition.write}{transition.move}{transition.next_state}")
        rows.append(row)
    return symbols, rows


def latex_escape(text):
    return text.replace("\\", r"\textbackslash{}").replace("#", r"\#").replace("_", r"\_").replace(BLANK, r"$\square$")


def pretty_print_program(program):
    """Pretty print the rules as a state x symbol table, then as a LaTeX array."""
    symbols, rows = build_table(program)

    # === Terminal Human-Readable Table ===
    print("\n=== Transition Table ===")
    print("\t".join([" "] + symbols))
    for row in rows:
        print("\t".join(row))

    # === LaTeX Table Output ===
    print("\n=== LaTeX Table ===")
    print(r"\begin{array}{c|" + "c" * len(symbols) + "}")
    print("State/Symbol & " + " & ".join([f"\\text{{{latex_escape(s)}}}" for s in symbols]) + r" \\ \hline")
    for row in rows:
        print(" & ".join(latex_escape(cell) for cell in row) + r" \\")
    print(r"\end{array}")


def main():
    parser = argparse.ArgumentParser(description="Turing Machine Program Inspector")
    parser.add_argument("--program", help="Program JSON file to inspect")
    parser.add_argument("--preset", help="Built-in program to inspect, e.g., busyBeaver3")
    args = parser.parse_args()

    if args.program:
        program = load_program_file(args.program)
    elif args.preset:
        program = get_preset(args.preset)
    else:
        raise ValueError("You must specify either --program or --preset.")

    print(f"[INFO] Program {program.name}")
    print(f"  States: {', '.join(program.states)}")
    print(f"  Initial State: {program.initial_state}")
    print(f"  Halt States: {', '.join(program.halt_states) or '(none)'}")
    print(f"  Rules: {len(program.transitions)}")
    pretty_print_program(program)


if __name__ == "__main__":
    main()
