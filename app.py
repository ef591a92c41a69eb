# app.py

import argparse
import sys
from pathlib import Path

from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.prompt import Prompt, IntPrompt, Confirm
from rich.table import Table

from config.config_loader import DEFAULT_CONFIG_PATH, load_config
from logger.logger import JSONLogger
from simulator.history import IndexOutOfRange
from simulator.presets import PRESETS, get_preset
from simulator.program import MalformedProgram, load_program_file
from simulator.transitions import MOVES
from simulator.turing_machine import TuringMachine, HALT_NO_TRANSITION

console = Console()


# === Utilities ===
def load_runtime_config(path=DEFAULT_CONFIG_PATH):
    try:
        return load_config(path, verbose=False)
    except FileNotFoundError:
        console.print(f"[red]Error: {path} not found![/red]")
        sys.exit(1)


def build_machine(config, program=None):
    logger = JSONLogger(config["output_directory"], config["log_file_prefix"])
    if program is None:
        program = get_preset(config["default_program"])
    return TuringMachine(
        program,
        interval_ms=config["run_interval_ms"],
        logger=logger,
        log_steps=config["log_steps"],
    )


def status_line(machine):
    if machine.is_halted:
        if machine.halt_reason == HALT_NO_TRANSITION:
            return f"[red]HALTED[/red] (no transition for state '{machine.current_state}' reading '{machine.read()}')"
        return f"[green]HALTED[/green] in halt state '{machine.current_state}'"
    return f"[cyan]{machine.status.upper()}[/cyan]"


def render_machine(machine, window=11):
    half = window // 2
    start = machine.head - half
    symbols = machine.tape_window(start, start + window)

    table = Table(show_header=True, header_style="dim", box=None)
    for offset in range(window):
        table.add_column(str(start + offset), justify="center")
    table.add_row(*[
        f"[bold black on yellow]{s}[/bold black on yellow]" if start + i == machine.head else s
        for i, s in enumerate(symbols)
    ])
    table.add_row(*["▲" if start + i == machine.head else "" for i in range(window)])

    action = machine.last_action
    last = "-" if action is None else (
        f"{action.from_state}: read '{action.read}' -> write '{action.write}', "
        f"move {action.move}, goto {action.to_state}"
    )
    body = Table.grid(padding=(0, 1))
    body.add_row(table)
    body.add_row(f"State: [bold]{machine.current_state}[/bold]   Head: {machine.head}   "
                 f"Step {machine.history_index} of {len(machine.history) - 1}")
    body.add_row(f"Status: {status_line(machine)}")
    body.add_row(f"Last: {last}")
    return Panel(body, title=machine.program.name)


def show_main_menu():
    console.print("\n[bold cyan]Turing Machine Debugger[/bold cyan]")
    for key, (label, _) in MENU.items():
        console.print(f"[{key}] {label}")


# === Execution handlers ===
def handle_step(machine, config):
    if not machine.step() and machine.halt_reason == HALT_NO_TRANSITION:
        console.print("[yellow]No matching transition. Machine halted.[/yellow]")


def handle_run(machine, config):
    if not machine.run(config["run_interval_ms"]):
        console.print("[yellow]Machine is halted. Reset or seek first.[/yellow]")
        return
    window = config["tape_window"]
    try:
        with Live(render_machine(machine, window), console=console, refresh_per_second=20) as live:
            while not machine.wait(0.05):
                live.update(render_machine(machine, window))
            live.update(render_machine(machine, window))
    except KeyboardInterrupt:
        machine.pause()
        console.print("[yellow]Paused.[/yellow]")
    if machine.run_error is not None:
        console.print(f"[red]Run stopped: {machine.run_error}[/red]")


def handle_back(machine, config):
    if machine.step_back() is None:
        console.print("[yellow]Already at the first step.[/yellow]")


def handle_forward(machine, config):
    if machine.step_forward() is None:
        console.print("[yellow]Already at the latest step.[/yellow]")


def handle_jump(machine, config):
    index = IntPrompt.ask(f"Step to jump to (0-{len(machine.history) - 1})", default=0)
    machine.seek(index)


def handle_reset(machine, config):
    machine.reset()
    console.print("[green]Machine reset.[/green]")


# === Editing handlers ===
def handle_edit_cell(machine, config):
    position = IntPrompt.ask("Cell position", default=machine.head)
    symbol = Prompt.ask("Symbol (empty for blank)", default="")
    machine.edit_tape_cell(position, symbol)


def handle_quick_tape(machine, config):
    text = Prompt.ask("Tape contents (starting at position 0)", default="")
    head = IntPrompt.ask("Head position", default=0)
    machine.set_tape(text, head)


def handle_move_head(machine, config):
    machine.move_head(IntPrompt.ask("New head position", default=machine.head))


def handle_set_state(machine, config):
    state = Prompt.ask("Current state", choices=machine.states, default=machine.current_state)
    machine.set_current_state(state)


def handle_toggle_halt(machine, config):
    state = Prompt.ask("State", choices=machine.states)
    is_halt = machine.toggle_halt(state)
    console.print(f"[green]{state} is {'now' if is_halt else 'no longer'} a halt state.[/green]")


def handle_add_state(machine, config):
    name = Prompt.ask("New state name")
    if machine.add_state(name):
        console.print(f"[green]Added {name}.[/green]")
    else:
        console.print(f"[yellow]{name} already exists or is empty.[/yellow]")


def handle_delete_state(machine, config):
    name = Prompt.ask("State to delete", choices=machine.states)
    if machine.delete_state(name):
        console.print(f"[green]Deleted {name}.[/green]")
    else:
        console.print(f"[red]Cannot delete {name}: it is current or used by a transition.[/red]")


def handle_add_transition(machine, config):
    state = Prompt.ask("When in state", default=machine.current_state)
    symbol = Prompt.ask("Reading symbol (empty for blank)", default="")
    write = Prompt.ask("Write symbol (empty for blank)", default="")
    move = Prompt.ask("Move", choices=list(MOVES), default="R")
    next_state = Prompt.ask("Next state", default=state)
    transition = machine.upsert_transition(state, symbol, write, move, next_state)
    console.print(f"[green]Rule set: {transition.write}{transition.move}{transition.next_state}[/green]")


def handle_delete_transition(machine, config):
    state = Prompt.ask("State")
    symbol = Prompt.ask("Symbol (empty for blank)", default="")
    if machine.delete_transition(state, symbol):
        console.print("[green]Transition deleted.[/green]")
    else:
        console.print("[yellow]No such transition.[/yellow]")


# === Inspection handlers ===
def handle_show_transitions(machine, config):
    table = Table(show_header=True, header_style="bold magenta", title="Transitions")
    for column in ("State", "Read", "Write", "Move", "Next"):
        table.add_column(column, justify="center")
    for (state, symbol), t in machine.transitions.items():
        style = "bold yellow" if (state, symbol) == (machine.current_state, machine.read()) else None
        table.add_row(state, symbol, t.write, t.move, t.next_state, style=style)
    console.print(table)
    halts = ", ".join(machine.halt_states) or "(none)"
    console.print(f"States: {', '.join(machine.states)}   Halt: {halts}")


def handle_show_log(machine, config):
    table = Table(show_header=True, header_style="bold magenta", title="Execution Log")
    table.add_column("Step", justify="right")
    table.add_column("From")
    table.add_column("Read", justify="center")
    table.add_column("Write", justify="center")
    table.add_column("Move", justify="center")
    table.add_column("To")
    for i, snapshot in enumerate(machine.history):
        style = "bold cyan" if i == machine.history_index else None
        if snapshot.action is None:
            table.add_row(str(i), snapshot.state, "", "", "", "(start)", style=style)
        else:
            a = snapshot.action
            table.add_row(str(i), a.from_state, a.read, a.write, a.move, a.to_state, style=style)
    console.print(table)


# === Program handlers ===
def handle_load_preset(machine, config):
    name = Prompt.ask("Preset", choices=list(PRESETS), default=config["default_program"])
    machine.load(get_preset(name))


def handle_import(machine, config):
    path = Prompt.ask("Program JSON file")
    machine.load(load_program_file(path))
    console.print(f"[green]Loaded {machine.program.name}.[/green]")


def handle_export(machine, config):
    path = Path(Prompt.ask("Export to", default="program.json"))
    if path.exists() and not Confirm.ask(f"{path} exists. Overwrite?", default=False):
        return
    path.write_text(machine.export_json(), encoding="utf-8")
    console.print(f"[green]Program exported to {path}.[/green]")


MENU = {
    "s": ("Step", handle_step),
    "r": ("Run (Ctrl-C to pause)", handle_run),
    "b": ("Back one step", handle_back),
    "f": ("Forward one step", handle_forward),
    "j": ("Jump to step", handle_jump),
    "x": ("Reset", handle_reset),
    "c": ("Edit tape cell", handle_edit_cell),
    "q": ("Quick tape input", handle_quick_tape),
    "h": ("Move head", handle_move_head),
    "k": ("Set current state", handle_set_state),
    "t": ("Toggle halt state", handle_toggle_halt),
    "a": ("Add state", handle_add_state),
    "d": ("Delete state", handle_delete_state),
    "n": ("Add/update transition", handle_add_transition),
    "m": ("Delete transition", handle_delete_transition),
    "v": ("Show transitions", handle_show_transitions),
    "l": ("Show execution log", handle_show_log),
    "p": ("Load preset", handle_load_preset),
    "i": ("Import program", handle_import),
    "e": ("Export program", handle_export),
    "0": ("Exit", None),
}


def interactive_main(config):
    machine = build_machine(config)

    while True:
        console.print(render_machine(machine, config["tape_window"]))
        show_main_menu()
        choice = Prompt.ask("\nChoose an option", choices=list(MENU), default="s")

        _, handler = MENU[choice]
        if handler is None:
            console.print("[bold green]Goodbye![/bold green]")
            break
        try:
            handler(machine, config)
        except (MalformedProgram, IndexOutOfRange, ValueError, OSError) as e:
            console.print(f"[red]Error: {e}[/red]")


# === CLI Mode for Automation ===
def cli_main(args, config):
    program = load_program_file(args.program) if args.program else get_preset(args.preset)
    machine = build_machine(config, program)

    if args.tape is not None or args.head is not None:
        machine.set_tape(args.tape if args.tape is not None else program.initial_tape,
                         args.head if args.head is not None else program.start_position)

    max_steps = args.max_steps if args.max_steps is not None else config["max_steps"]
    steps = machine.run_to_halt(max_steps=max_steps)

    console.print(render_machine(machine, config["tape_window"]))
    console.print(f"Steps: {steps}   Tape: {machine.tape.to_string() or '(blank)'}")

    if args.export:
        Path(args.export).write_text(machine.export_json(), encoding="utf-8")
        console.print(f"[green]Program exported to {args.export}.[/green]")

    return 0 if machine.is_halted else 2


def main(argv=None):
    parser = argparse.ArgumentParser(description="Turing Machine Debugger")
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Runtime configuration JSON file")
    parser.add_argument("--program", help="Program JSON file to run non-interactively")
    parser.add_argument("--preset", choices=list(PRESETS), help="Built-in program to run non-interactively")
    parser.add_argument("--tape", help="Override the initial tape contents")
    parser.add_argument("--head", type=int, help="Override the initial head position")
    parser.add_argument("--max-steps", type=int, help="Step limit for non-interactive runs")
    parser.add_argument("--export", help="Write the final machine as program JSON")
    args = parser.parse_args(argv)

    config = load_runtime_config(args.config)

    if args.program or args.preset:
        try:
            return cli_main(args, config)
        except (MalformedProgram, OSError) as e:
            console.print(f"[red]Error: {e}[/red]")
            return 1
    interactive_main(config)
    return 0


if __name__ == "__main__":
    sys.exit(main())
