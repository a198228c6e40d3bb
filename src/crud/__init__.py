"""Generic CRUD engine: request translation, SQL generation and result mapping."""
