"""Skyblock armour sniper.

A small web server and SQLite-backed search layer for finding dyed armour
pieces and complete armour sets by colour. Run ``python3 src/app/server.py``
after loading items with ``PYTHONPATH=src python3 -m scripts.import_items``.
"""

__all__ = []
