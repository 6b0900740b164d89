"""Environment subsystems: weather, water, nitrogen, weeds, disturbances."""
