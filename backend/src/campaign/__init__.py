"""Campaign Tracker: influencer code redemption campaign."""

__version__ = "1.0.0"
