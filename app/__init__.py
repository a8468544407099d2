"""Notification delivery service.

Keeps ``app`` a regular package so it is not resolved as a namespace
package shared with installed distributions.
"""
