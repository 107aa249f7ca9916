"""repoqa — ask questions about a GitHub repository, answered from its own code."""
