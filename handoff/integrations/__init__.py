"""HTTP clients for the design tool and the code-generation service."""
