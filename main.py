# Main.py
""""" Entry point for the Decimal Calculator.

   Responsibilities:
   - Load configuration and set up logging (debug setting)
   - Start the Qt GUI, or the text REPL with --repl
   - Evaluate a single expression given with -e

"""""
import argparse
import logging
import sys

from DecimalCalc import config_manager as config_manager, error as E, MathEngine as MathEngine


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Arbitrary-precision decimal calculator.")
    parser.add_argument("--repl", action="store_true", help="use the text REPL instead of the GUI")
    parser.add_argument("-e", "--expression", help="evaluate one expression and exit")
    return parser.parse_args(argv)


def main(argv=None):

    """
    Load configuration and start the requested front-end.
    - Keep this thin: no business logic here.
    """

    args = parse_args(argv)
    all_settings = config_manager.load_setting_value("all")

    logging.basicConfig(
        level=logging.DEBUG if all_settings["debug"] else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(__name__).debug("Config loaded: %s", all_settings)

    if args.expression is not None:
        try:
            print(MathEngine.calculate(args.expression, MathEngine.Calculator(all_settings)))
        except E.MathError as e:
            print(f"Error {e.code}: {e.message}", file=sys.stderr)
            return 1
        return 0

    if args.repl:
        MathEngine.repl(MathEngine.Calculator(all_settings))
        return 0

    # Imported here so the REPL works without a display or Qt installed
    from DecimalCalc import UI as UI

    # Delegate control to the UI layer; the UI owns the event loop.
    return UI.main()


if __name__ == "__main__":
    sys.exit(main())
