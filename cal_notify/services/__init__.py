"""Outbound integrations: calendar invites and Postmark email"""
