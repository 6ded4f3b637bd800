"""Routing — name codec, operation descriptors, dispatch table and matcher.

Operations are discovered from handler objects at registration time and
published into a snapshot-replaced table that requests read lock-free.
"""
