"""Sheet Toolbox — operations over multi-state sprite sheets."""
