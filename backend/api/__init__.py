"""Cyclone Tracks HTTP API"""
