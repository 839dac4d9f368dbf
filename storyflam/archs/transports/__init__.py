"""StoryFlam transport module.

Usage:
    from storyflam.archs.newsroom import SQLDatabaseEngine
    from storyflam.archs.transports.http import HTTPConfig, NewsroomServer

    engine = SQLDatabaseEngine.from_url("sqlite+aiosqlite:///storyflam.db")
    server = NewsroomServer(engine=engine, config=HTTPConfig(host="127.0.0.1", port=8000))
    server.run()
"""
