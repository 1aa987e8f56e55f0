"""OllaCart - catalogue social, paniers multiples, affiliation et paiements."""

__version__ = "0.1.0"
