"""Infrastructure adapters implementing the credential store ports."""
