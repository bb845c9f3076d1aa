"""
Point Tracker - scoring service for mobile esports tournaments

Responsibilities:
- Tournament and team registry (CRUD, team logos)
- Access-code and player sessions
- Screenshot upload, AI analysis and point scoring
- Standings and screenshot gallery
- Tournament event stream
"""
