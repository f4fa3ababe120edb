"""
extensions.py

Finds the bot's extensions (cogs) on disk so `main.py` can load them without
a hard-coded list.
"""
import os

def discover_cogs(cogs_path: str, package: str = 'cogs') -> list[str]:
    """
    Scans `cogs_path` and returns the dotted module names of every cog in it
    (e.g. 'cogs.reminders'), sorted so they load in a stable order.
    Files starting with an underscore are skipped.
    """
    if not os.path.isdir(cogs_path):
        return []

    return sorted(
        f'{package}.{filename[:-3]}'
        for filename in os.listdir(cogs_path)
        if filename.endswith('.py') and not filename.startswith('_')
    )
