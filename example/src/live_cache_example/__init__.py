"""Runnable examples for the live-cache library."""
