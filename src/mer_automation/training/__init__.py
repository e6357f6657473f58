"""Safety training sessions and the OH 102 quiz."""
