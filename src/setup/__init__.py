"""Setup: group config file and the interactive provisioning wizard."""
