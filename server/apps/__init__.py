"""Django applications of the server project."""
