"""certer subcommands."""
