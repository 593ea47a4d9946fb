"""Entry point for running cosmos_infomaniak as a module"""

from cosmos_infomaniak.cli import main

if __name__ == "__main__":
    main()
