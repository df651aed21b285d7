"""
cbzdrop - watch a folder for CBZ comics, convert them to EPUB, mail them.

Subpackages:
    archive — CBZ extraction, media-type sniffing, ComicInfo parsing
    packaging — size-bounded splitting and EPUB building
    watchfolders — polling arrival detection with a stability gate
    persistence — append-only ledger of processed archives
    delivery — SMTP hand-off of finished packages
    config — TOML configuration validated at start-up
    pipeline — drives one archive through all of the above
"""

__version__ = "0.1.0"
