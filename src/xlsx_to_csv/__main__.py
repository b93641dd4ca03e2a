"""Allow ``python -m xlsx_to_csv``."""

from xlsx_to_csv.cli import app

if __name__ == "__main__":
    app()
