"""Rock-paper-scissors room service."""
