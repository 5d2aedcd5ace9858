"""Pipeline components and configuration."""
