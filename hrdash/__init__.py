"""
hrdash - attendance & leave gateway for the HR dashboard
"""
