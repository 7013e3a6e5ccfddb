"""
cdn_domains — custom domains and certificates on shared CloudFront distributions.

Binds customer hostnames as aliases on a pool of capacity-limited shared
distributions using read-version-then-conditionally-write updates, and drives
customer and managed certificates through upload, provisioning and deletion.

Built on the Railway-Oriented Programming (ROP) framework for
explicit, composable, functional error handling.
"""

__version__ = "0.1.0"
