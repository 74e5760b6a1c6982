"""
Language model access: persona prompt, turn construction and the Ollama client.
"""
