"""schemaforge command-line interface."""
