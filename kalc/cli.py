"""
kalc - Command Line Interface

Usage:
    kalc "f(x) = x^2" "f(4)" [--degrees] [--backend float|decimal] [--precision N]
    kalc -f session.txt [--debug]
    kalc "2 + 3y" --emit-ast
    python -m kalc "1/3"
"""

import sys
import argparse


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="kalc",
        description="kalc — calculator language with exact-looking result estimation",
    )
    parser.add_argument("expressions", nargs="*", metavar="EXPR",
                        help="Inputs to evaluate, in order, in one session")
    parser.add_argument("-f", "--file", dest="file",
                        help="Evaluate each non-blank line of this file")
    parser.add_argument(
        "--degrees",
        action="store_true",
        help="Use degrees for trigonometric functions (default: radians)",
    )
    parser.add_argument(
        "--backend",
        choices=["float", "decimal"],
        default="float",
        help="Numeric backend (default: float)",
    )
    parser.add_argument(
        "--precision",
        type=int,
        default=None,
        help="Significant digits for the decimal backend",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Print evaluation phase info to stderr",
    )
    parser.add_argument(
        "--emit-ast",
        action="store_true",
        dest="emit_ast",
        help="Print the parsed statements as JSON instead of evaluating",
    )

    args = parser.parse_args(argv)

    from .calculator import Calculator, CalculationError
    from .interpreter import AngleUnit

    inputs = list(args.expressions)
    if args.file:
        try:
            with open(args.file, "r", encoding="utf-8") as f:
                inputs.extend(line.strip() for line in f if line.strip())
        except FileNotFoundError:
            print(f"[kalc] Error: Input file not found: {args.file!r}", file=sys.stderr)
            sys.exit(1)

    if not inputs:
        parser.error("nothing to evaluate")

    try:
        calculator = Calculator(
            angle_unit=AngleUnit.DEGREES if args.degrees else AngleUnit.RADIANS,
            backend=args.backend,
            precision=args.precision,
            debug=args.debug,
        )
    except ValueError as e:
        print(f"[kalc] Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        for source in inputs:
            if args.emit_ast:
                print(calculator.emit_ast(source))
                continue
            result = calculator.evaluate(source)
            if result.display:
                print(result.display)
    except CalculationError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
