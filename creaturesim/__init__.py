"""An ecosystem simulation library of creatures that wander, hunt, eat and swarm."""

__version__ = "0.1.0"