# Personalized Storybook Generator
