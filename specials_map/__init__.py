"""Scrape restaurant week specials, geocode them and plot them on a map."""
