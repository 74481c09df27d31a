"""Allow running utbuild as a module: python -m utbuild"""

from utbuild.cli import main

if __name__ == "__main__":
    main()
