"""Allow running distcalc as a module: python -m distcalc"""

from .cli import cli

if __name__ == "__main__":
    cli()
