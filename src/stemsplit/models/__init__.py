"""Separation variants and engines"""
