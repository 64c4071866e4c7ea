#!/usr/bin/env python3
"""
Studio Crew - Interactive Menu Launcher
Run this file to reach the crew commands through a simple menu.

Usage:
    python main.py
"""

import subprocess
import sys
import os

PYTHON = sys.executable
CREW = [PYTHON, "studiocrew/cli/main.py"]

# Project root on PYTHONPATH so 'studiocrew' package is importable
ENV = os.environ.copy()
ENV["PYTHONPATH"] = os.path.dirname(os.path.abspath(__file__))

ROLE_HINT = "Photographer/Cinematographer/Drone Pilot/Same Day Editor/Other"


def run(args: list[str]):
    """Run a crew CLI command and return to menu when done."""
    print()
    subprocess.run(CREW + args, env=ENV)
    print()
    input("  Press Enter to return to menu...")


def prompt(label: str, required: bool = True) -> str:
    """Prompt user for input. Returns empty string if optional and skipped."""
    while True:
        value = input(f"  {label}: ").strip()
        if value:
            return value
        if not required:
            return ""
        print("  (required - please enter a value)")


def prompt_optional(label: str) -> str:
    return prompt(f"{label} (optional, Enter to skip)", required=False)


def clear():
    os.system("cls" if os.name == "nt" else "clear")


# =============================================================================
# COMMAND HANDLERS
# =============================================================================

def crew_show():
    eid = prompt("Event ID")
    run(["crew", "show", eid])

def crew_assign():
    eid = prompt("Event ID")
    pid = prompt("Staff or freelancer ID")
    role = prompt(f"Role ({ROLE_HINT})")
    day = prompt_optional("Day (default: 1)")
    slot = prompt_optional("Slot number (default: first open)")
    args = ["crew", "assign", eid, pid, "--role", role]
    if day: args += ["--day", day]
    if slot: args += ["--slot", slot]
    run(args)

def crew_clear():
    eid = prompt("Event ID")
    role = prompt(f"Role ({ROLE_HINT})")
    slot = prompt("Slot number")
    day = prompt_optional("Day (default: 1)")
    args = ["crew", "clear", eid, "--role", role, "--slot", slot]
    if day: args += ["--day", day]
    run(args)

def crew_conflicts():
    pid = prompt("Staff or freelancer ID")
    start = prompt("First day (YYYY-MM-DD)")
    days = prompt_optional("Number of days (default: 1)")
    exclude = prompt_optional("Event ID to leave out")
    args = ["crew", "conflicts", pid, "--date", start]
    if days: args += ["--days", days]
    if exclude: args += ["--exclude", exclude]
    run(args)

def crew_status():
    args = ["crew", "status"]
    f = prompt_optional("Filter (staff_complete/staff_incomplete/no_staff)")
    if f: args += ["--filter", f]
    run(args)


# =============================================================================
# MENU LAYOUT
# =============================================================================

MENU = [
    ("EVENT CREW", [
        ("Show event crew",              crew_show),
        ("Assign person to slot",        crew_assign),
        ("Clear a slot",                 crew_clear),
    ]),
    ("REPORTS", [
        ("Check person's bookings",      crew_conflicts),
        ("Staffing status of events",    crew_status),
    ]),
]


def print_menu():
    clear()
    print("=" * 50)
    print("   STUDIO CREW - COMMAND CENTRE")
    print("=" * 50)

    n = 1
    numbering = {}  # maps display number -> handler function

    for section, commands in MENU:
        print(f"\n  {section}")
        print(f"  {'-' * len(section)}")
        for label, handler in commands:
            print(f"  {n:>2}.  {label}")
            numbering[n] = handler
            n += 1

    print("\n" + "=" * 50)
    print("   0.  Exit")
    print("=" * 50)
    return numbering


def main():
    while True:
        numbering = print_menu()

        try:
            choice = input("\n  Select a command: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\n\n  Goodbye!\n")
            break

        if choice == "0" or choice.lower() in ("q", "quit", "exit"):
            print("\n  Goodbye!\n")
            break

        try:
            n = int(choice)
            if n in numbering:
                clear()
                numbering[n]()
            else:
                print(f"\n  Invalid selection: {choice}")
                input("  Press Enter to continue...")
        except ValueError:
            print(f"\n  Please enter a number.")
            input("  Press Enter to continue...")


if __name__ == "__main__":
    main()
