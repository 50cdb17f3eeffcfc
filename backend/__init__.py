"""Cyclone Tracks backend"""
