"""Scheduler cycle execution: process lock (control) and run_once (runner)."""
