"""
Use cases: one operation per module, each taking an explicit Session.
"""
