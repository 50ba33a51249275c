"""docvault — personal document and smart-contract vault.

Accounts (registration, email verification, password management, JWT
sessions) and owner-scoped storage for rich-text documents and smart
contract sources.
"""

__version__ = "0.1.0"
