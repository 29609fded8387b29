"""py-cord views, modals and embeds."""
