"""Lectures domain - Attendance state machine, postponement and conflict detection"""
