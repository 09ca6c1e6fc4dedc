"""Pipeline orchestration, configuration, logging and errors"""
