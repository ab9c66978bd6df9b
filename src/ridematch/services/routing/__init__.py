"""Route timing: provider directions, geometric estimates and timetable propagation."""
