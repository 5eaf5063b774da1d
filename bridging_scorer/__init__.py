"""
Bridging scorer for community notes.

Computes a helpfulness intercept for every community note from crowd
ratings, using a small matrix factorization that only rewards notes rated
helpful by raters on different sides of a latent viewpoint axis.

The package provides:
- The batch scoring engine (bridging_scorer.scoring)
- A service wrapper with run bookkeeping and status transitions
- A FastAPI surface and a command line entry point
"""

__version__ = "0.1.0"
