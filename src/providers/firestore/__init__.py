"""Firestore document store providers.

FirestoreRESTProvider talks to the Firestore v1 REST API through httpx;
values.py holds the typed-value codec it shares with tests.
"""
