"""
Elastic Beanstalk entry point for the read-only usage API
"""
from backend.app import app as application

# For local testing
if __name__ == "__main__":
    application.run(debug=True)
