"""Language Server Protocol front end for the schema engine."""
