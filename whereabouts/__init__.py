"""Whereabouts compliance engine: quarterly 60-minute slot filing for athletes."""
