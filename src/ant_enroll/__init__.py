"""
ant_enroll — node identity bootstrap client.

Requests a signed certificate chain from a remote enrollment endpoint,
splits the returned PEM bundle into X.509 certificates, moves the
self-signed CA to the end of the chain, and appends the chain to a local
PEM store for later mutual-TLS use.

Built on the Railway-Oriented Programming (ROP) framework for
explicit, composable, functional error handling.
"""

__version__ = "0.1.0"
