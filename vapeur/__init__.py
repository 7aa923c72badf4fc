"""
Vapeur - Steam Metadata Sync for ES-DE

Keeps an ES-DE Steam catalog (gameList.xml and steamids.xml) in sync with
the Steam store, and downloads the referenced cover, marquee, screenshot
and video assets next to the frontend's other media.
"""

__version__ = "0.3.0"
