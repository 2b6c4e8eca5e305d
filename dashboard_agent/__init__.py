"""Dashboard agent: answers assistant questions from the data of dashboard mini-apps."""
