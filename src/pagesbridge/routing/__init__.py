"""Routing — synthesized function routes and their compiled mount patterns.

Routes are installed once at startup and matched by prefix, most
specific mount first.
"""
