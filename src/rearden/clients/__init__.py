"""Clients wrapping the external restic and rclone executables."""
