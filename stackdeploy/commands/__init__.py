"""stackdeploy CLI commands"""
