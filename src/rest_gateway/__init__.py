"""HTTP gateway serving generic CRUD endpoints over the reflected schema."""
