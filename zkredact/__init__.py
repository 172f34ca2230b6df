"""zkredact - Verifiable line redaction with portable proofs.

Prove that a published redacted file was derived from an undisclosed original
by blanking exactly a declared set of lines, without revealing the original.
"""

__version__ = "0.1.0"
__author__ = "zkredact Contributors"

from zkredact.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
