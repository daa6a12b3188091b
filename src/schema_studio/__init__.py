"""Schema Studio: relational model editing and DDL generation."""
