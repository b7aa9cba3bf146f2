"""SpacePlus Worldwide - corporate website backend.

Public content API, admin CMS endpoints, and the social media pipeline that
scrapes configured platforms and promotes posts into news articles.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
