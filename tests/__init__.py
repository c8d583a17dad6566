import os

TEST_DATA_FOLDER = os.path.join(os.path.dirname(__file__), 'data')
