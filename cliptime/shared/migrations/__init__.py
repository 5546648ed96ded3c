"""SQL schema migrations for the cliptime record store."""
