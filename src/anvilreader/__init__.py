"""AnvilReader - read Anvil region files into chunks, sections and blocks."""

__version__ = "0.1.0"
