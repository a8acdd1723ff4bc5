"""Test suite for cdp-engine"""
