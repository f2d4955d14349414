"""HTTP route modules for the worklinks API."""
