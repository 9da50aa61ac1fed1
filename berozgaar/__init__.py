"""Markdown blog renderer: posts, post index and shared layout."""
