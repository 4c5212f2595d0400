"""storysync: keep markdown story checkboxes and an assistant's todo list consistent."""

__version__ = "0.1.0"
