"""Paint shop inventory and accounting backend.

The FastAPI application lives in :mod:`paintshop.main`; this package only
exposes the version so that importing models or services in scripts and tests
does not build the web app as a side effect.
"""

__version__ = "1.0.0"
